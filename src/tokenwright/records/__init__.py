"""Records - the durable deployment record and its on-disk schema."""
