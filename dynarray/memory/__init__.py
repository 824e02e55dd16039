from .allocator import CountingAllocator, CtypesAllocator, DEFAULT_ALLOCATOR

__all__ = ["CountingAllocator", "CtypesAllocator", "DEFAULT_ALLOCATOR"]
