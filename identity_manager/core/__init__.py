"""Cross-cutting pieces: security, access policies, storage, errors and validation."""
