"""
Test suite for the SUS Portal.

Contains unit tests for the services and integration tests for the API.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
