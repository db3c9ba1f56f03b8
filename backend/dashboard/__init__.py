"""Server-rendered dashboard for logging pickleball games and reviewing fault trends."""
