"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2), los
  vocabularios cerrados (enums) y las excepciones del dominio.
- El dominio no conoce httpx ni la CLI: solo conceptos del problema.
"""
