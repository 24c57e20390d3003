# Routes package init
"""
Training Record Backend: API Routes Package
============================================

Route Inventory:
    - health.py:          GET /health              (store connectivity probe)
    - training_record.py: /{...}/<handler>         (nine handlers, path-suffix dispatch)
    - envelope.py:        success/error JSON responses shared by both

Routes stay thin: decode the body, call a service, wrap the result.
Every store statement lives in app.services.
"""
