"""Example forms, registered with ``forms: {modules: [formwire.examples.contact]}``."""
