"""
Backend Scripts Module

This module contains utility scripts for database operations and maintenance.

Available scripts:
    - seed_data.py: Creates sample directory users and workflow templates
    - validate_workflow.py: Resolves a template's approval chain for an initiator

Usage:
    python -m scripts.seed_data
    python -m scripts.validate_workflow TEMPLATE_ID INITIATOR_ID
"""
