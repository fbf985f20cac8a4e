"""
Use-cases: one class per auth operation, composed from repositories and
services injected through the constructor.
"""
