"""Gallery Mosaic — FastAPI REST API layer.

Modules
-------
main
    Application factory, gallery routes, and the ``main()`` CLI entry point.
models
    Pydantic request/response models; also the wire contract used by
    ``mosaic.ui``.
"""
