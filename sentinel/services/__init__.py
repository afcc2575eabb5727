"""
Services layer - business logic behind the HTTP routes.

DESIGN PRINCIPLE:
- Services validate input and enforce membership rules, routes only translate HTTP
- Firestore access goes through FirestoreRepository, never directly from a service
- Each service exposes a module-level get_*_service() singleton
"""
