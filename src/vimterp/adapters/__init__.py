"""Host adapters for the interpreter."""
