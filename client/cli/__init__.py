"""Command-line composition root for the storefront session."""
