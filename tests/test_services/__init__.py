"""
Test Services Package
Tests for the business logic layer
"""
