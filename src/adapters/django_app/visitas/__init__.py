"""
Adapter Django do domínio de Visitas.

Models, mappers e repositórios que implementam os ports de
src/core/visitas, mais o notificador via Celery.
"""
