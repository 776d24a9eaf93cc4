def __getattr__(name: str):
    if name in {"configure_logging", "get_logger"}:
        from sinkswap import logging as _logging

        return getattr(_logging, name)
    raise AttributeError(f"module 'sinkswap' has no attribute {name}")


__all__ = ["configure_logging", "get_logger"]
