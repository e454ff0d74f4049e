"""OneWord: WordNet import, frequency enrichment, difficulty scoring and daily word selection."""
