"""nativestub: TypeScript stubs for Swift native modules."""

__version__ = "0.1.0"
