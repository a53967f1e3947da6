from .__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main

__all__ = [
    "main",
    "EXIT_SUCCESS_ALL",
    "EXIT_FATAL",
    "EXIT_PARTIAL_FAILURE",
]
