"""Track provider adapters (Chartmetric, Spotify Web API, editorial scrape)."""
