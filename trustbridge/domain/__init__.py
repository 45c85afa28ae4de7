"""Domain types and rules, free of storage and HTTP concerns."""
