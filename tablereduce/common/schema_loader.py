"""
Dynamic Schema Loader
Loads user-provided Python modules that declare a row schema
"""

import importlib.util
import os
import sys

from tablereduce.common.schema import Schema


class SchemaLoader:
    """Dynamically loads a Schema descriptor from a Python file"""

    def __init__(self, schema_file: str, attribute: str = 'SCHEMA'):
        """
        Initialize the schema loader

        Args:
            schema_file: Path to the user's Python file
            attribute: Module attribute holding the Schema instance
        """
        self.schema_file = schema_file
        self.attribute = attribute
        self.module = None

    def load_module(self):
        """
        Dynamically load the user module

        Raises:
            FileNotFoundError: If the schema file doesn't exist
        """
        if not os.path.exists(self.schema_file):
            raise FileNotFoundError(f"Schema file not found: {self.schema_file}")

        module_name = f"tablereduce_user_schema_{os.path.splitext(os.path.basename(self.schema_file))[0]}"
        spec = importlib.util.spec_from_file_location(module_name, self.schema_file)
        if spec is None or spec.loader is None:
            raise RuntimeError(f"Failed to load schema file: {self.schema_file}")
        module = importlib.util.module_from_spec(spec)
        # Registered so dataclasses declared in the file can resolve their module
        sys.modules[module_name] = module
        spec.loader.exec_module(module)
        self.module = module
        return module

    def get_schema(self) -> Schema:
        """
        Get the schema declared by the module

        Raises:
            AttributeError: If the module doesn't define the schema attribute
            TypeError: If the attribute is not a Schema
        """
        if not self.module:
            self.load_module()

        if not hasattr(self.module, self.attribute):
            raise AttributeError(f"Module must define '{self.attribute}'")
        schema = getattr(self.module, self.attribute)
        if not isinstance(schema, Schema):
            raise TypeError(f"'{self.attribute}' must be a Schema, got {type(schema).__name__}")
        return schema
