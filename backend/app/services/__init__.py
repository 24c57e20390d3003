# Services package init
"""
Training Record Backend: Services Layer
========================================

Service Inventory:
    - StoreService (base): timeout + SQLAlchemy error translation per stage
    - ReferenceService: parts and menus (live and archival), menu creation
    - RecordService: records with set details; transactional insert/delete

Services receive the request session as an argument and hold no
per-request state; one instance of each lives on app.state.
"""
