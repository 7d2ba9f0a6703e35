"""
services/ - Business Logic Layer
================================
Services orchestrate repositories and turn outcomes into user-facing results.
"""
