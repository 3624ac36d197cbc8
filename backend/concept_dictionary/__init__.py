"""Clinical concept dictionary service."""
