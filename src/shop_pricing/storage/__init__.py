"""Storage subpackage - object storage for product images."""
