"""Domain layer: wire models and validated queries"""
