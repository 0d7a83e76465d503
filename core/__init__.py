"""
compare-brief core package.

Modules
───────
models    : Pydantic data models (Brief, BriefRow, TopPick, Source, BriefRequest)
errors    : typed error hierarchy (BriefError and subclasses)
columns   : column / criteria normalisation to exactly five labels
validator : untrusted model output → validated Brief
demo      : deterministic offline demo briefs
generator : Claude-backed BriefService + resolve_brief outer boundary
codec     : portable share-link encode/decode
store     : keyed brief history (in-memory or SQLite backend)
explore   : seed categories and popular queries
"""
