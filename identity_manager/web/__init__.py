"""Server-rendered admin and user pages."""
