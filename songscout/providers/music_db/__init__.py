"""Music database adapters used for artist identity lookups (MusicBrainz)."""
