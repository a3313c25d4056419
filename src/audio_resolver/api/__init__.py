"""External service adapters for audio resolution.

Submodules:
    saavn     -- Metadata search client (song search + candidate parsing)
    scoring   -- Candidate scoring and selection policies
    instances -- Instance pool walking and mirrored-instance lookups
"""
