"""Resource directory and financing catalog backed by the relational store."""
