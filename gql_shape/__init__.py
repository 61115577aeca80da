"""Typed-shape GraphQL client."""
