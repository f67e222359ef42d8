"""Config subpackage - settings and shared constants."""
