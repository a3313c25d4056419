"""Audio Resolver -- find a playable source for a track via ranked fallback.

Core modules:
    config    -- Resolver configuration via pydantic-settings (endpoint pools,
                 timeouts, scoring constants, logging)
    cli       -- Click CLI: one-off `resolve` and `serve` for the HTTP app
    resolver  -- Strategy orchestration: metadata search, then instance pools
    handler   -- Query parsing and outcome -> HTTP status/body mapping
    server    -- FastAPI app wrapping the handler
    fetch     -- Timeout-bounded httpx calls
    models    -- Request-scoped data types and enums
    errors    -- Failure taxonomy

Subpackages:
    api       -- External service adapters (metadata search, scoring, instance pools)
"""
