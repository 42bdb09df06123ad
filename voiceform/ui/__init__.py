"""Streamlit form surface."""
