# Schemas package init: Pydantic request/response models
