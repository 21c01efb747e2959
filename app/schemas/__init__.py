"""
Schemas de entrada (validación de peticiones).
"""
