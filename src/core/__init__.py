"""
Core business logic for the video community.

This module is framework-agnostic - it doesn't import FastAPI, Snowflake,
or any infrastructure concerns. This separation means we can test the
community rules in isolation.
"""
