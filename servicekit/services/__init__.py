"""Setup operations that register request-pipeline behavior on a FastAPI app."""
