"""Pickleball game logging: fault tally, game entry, recent games, and fault trends."""
