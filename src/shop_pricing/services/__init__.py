"""Services subpackage - data-store backed catalog operations."""
