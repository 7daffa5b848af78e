#!/usr/bin/env python3
"""
Configuration schema definition for validation
"""
from typing import Dict, Any, List


class ConfigSchema:
    """Configuration schema for validation"""

    SCHEMA = {
        'database': {
            'host': {'type': str, 'required': True},
            'port': {'type': int, 'required': True},
            'database': {'type': str, 'required': True},
            'user': {'type': str, 'required': True},
            'password': {'type': str, 'required': False},
            'schema': {'type': str, 'required': False},
        },
        'validation': {
            'out_of_range': {'type': str, 'required': False,
                             'choices': ('reject', 'clamp')},
            'thresholds': {'type': dict, 'required': False},
        },
        'reclassification': {
            'confidence_high': {'type': (int, float), 'required': False},
            'confidence_medium': {'type': (int, float), 'required': False},
        },
        'msa': {
            'conservation_threshold': {'type': (int, float), 'required': False},
            'gap_threshold': {'type': (int, float), 'required': False},
        },
        'pagination': {
            'default_page_size': {'type': int, 'required': False},
            'max_page_size': {'type': int, 'required': False},
        },
        'logging': {
            'level': {'type': str, 'required': False},
            'format': {'type': str, 'required': False},
            'log_dir': {'type': str, 'required': False},
        },
        'export': {
            'output_dir': {'type': str, 'required': False},
        },
    }

    @classmethod
    def validate(cls, config: Dict[str, Any]) -> List[str]:
        """Validate configuration against schema

        Args:
            config: Configuration to validate

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        for section, fields in cls.SCHEMA.items():
            if any(props.get('required', False) for props in fields.values()):
                if section not in config:
                    errors.append(f"Missing required configuration section: {section}")
                    continue

            if section not in config:
                continue

            section_config = config[section]
            if not isinstance(section_config, dict):
                errors.append(f"Configuration section {section} must be a mapping")
                continue

            for field, props in fields.items():
                if props.get('required', False) and field not in section_config:
                    errors.append(f"Missing required configuration field: {section}.{field}")
                    continue

                if field not in section_config:
                    continue

                value = section_config[field]
                expected_type = props.get('type')
                # bool is an int subclass; never accept it for numeric fields
                if expected_type and (isinstance(value, bool) or not isinstance(value, expected_type)):
                    type_name = (expected_type.__name__ if isinstance(expected_type, type)
                                 else '/'.join(t.__name__ for t in expected_type))
                    errors.append(
                        f"Invalid type for {section}.{field}: expected {type_name}, "
                        f"got {type(value).__name__}"
                    )
                    continue

                choices = props.get('choices')
                if choices and value not in choices:
                    errors.append(
                        f"Invalid value for {section}.{field}: {value!r} "
                        f"(expected one of {', '.join(choices)})"
                    )

        return errors
