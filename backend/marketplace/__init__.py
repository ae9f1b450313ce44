"""Marketplace identity and directory backend."""
