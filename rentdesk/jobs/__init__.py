"""Background jobs for Rentdesk."""
