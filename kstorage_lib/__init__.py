"""KStorage: persistent key/value storage for structured values and blobs."""
