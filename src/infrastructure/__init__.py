"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- snowflake: Document persistence
- media: Cloud media (Cloudinary)
- video: FFmpeg processing
- security: Password hashing

These wrappers translate between external formats and our domain models.
"""
