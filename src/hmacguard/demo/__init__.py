"""Demo server protected by hmacguard."""
