"""Streamlit host for the invoice dashboard."""
