"""
NoteDigest Backend: Services Layer
====================================

Business logic between the routes (HTTP) and the database.

Service Inventory:
    - TokenEstimator: word-count token estimate and budget check
    - RetryingCaller: per-attempt timeout, exponential backoff, exhaustion error
    - LLMService (abstract) / GeminiService: the remote model boundary
    - AIGateway: budget-checked, retried text/summary/tag generation
    - NoteStore: owner-scoped CRUD, archive lifecycle, listing and search
    - SummaryStore: one current AI summary per note
"""
