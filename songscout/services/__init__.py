"""Domain services: scoring, label classification, identity, contacts, audit."""
