"""Classes used as autowiring subjects in tests."""
