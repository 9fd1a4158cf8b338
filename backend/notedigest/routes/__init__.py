"""
NoteDigest Backend: API Routes Package
========================================

Route Inventory:
    - notes.py:   /api/notes...   notes, lifecycle, summaries, tags
    - ai.py:      /api/ai...      free text generation, AI health
    - health.py:  GET /health     service + database + AI health
    - deps.py:    owner id and AI gateway dependencies

Routes stay thin: extract parameters, call a service, serialize the result.
"""
