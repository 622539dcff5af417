"""Service layer for the WIRsuchen backend."""
