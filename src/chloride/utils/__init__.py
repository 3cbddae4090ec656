"""
Utils Module - Shared Utilities
===============================

Modules:
    logger: Console + JSON logging with credential redaction
    http_logger: httpx event hooks for request/response logging
    formatting: Byte-size display formatting
    feedback: Transient success/error messages with auto-expiry
    json_utils: Ordered shape matchers for bare/wrapped JSON collections
"""
