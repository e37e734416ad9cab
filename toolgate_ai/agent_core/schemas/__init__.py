"""Pydantic schemas shared by the policy, parsing, tools and runtime layers."""
