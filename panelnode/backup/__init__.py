"""Backup archive locations, sizes and checksums."""