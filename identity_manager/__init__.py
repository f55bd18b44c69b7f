"""Identity and support-ticket management backend."""
