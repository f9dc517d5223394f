"""Training opponent: tiered move selection, threat warnings, post-game review."""
