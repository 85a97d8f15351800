"""Naming helpers shared by the flattener and the type resolver.

Both passes must derive the same name for the same nested schema, so the
rules live in one place.
"""

DEFINITION_PREFIX = "#/definitions/"

# Property names that would collide with reserved words in generated code.
_RENAMED_PROPERTIES = {"arg": "Arguments", "args": "Arguments"}

# Separators that start a new word. Any other non-alphanumeric is dropped.
_WORD_SEPARATORS = "_ -."


def property_key(name):
    """Return the JSON form of a decoded mapping key.

    YAML 1.1 loaders turn keys such as ``on``, ``yes`` or ``200`` into
    booleans and numbers, while CRD property names are always strings.
    """
    if isinstance(name, bool):
        return "true" if name else "false"
    return str(name)


def to_pascal_case(name):
    """Convert a property name to PascalCase.

    The first letter, every letter following a digit and every letter
    following one of ``_``, ``-``, `` `` or ``.`` are upper-cased, other
    letters are left untouched. Non-alphanumeric characters are dropped, so
    ``"fooBar"`` becomes ``"FooBar"``, ``"foo-bar_baz"`` becomes
    ``"FooBarBaz"`` and ``"v1beta1"`` becomes ``"V1Beta1"``. Names without
    any alphanumeric character (like ``"-"``) yield an empty string.
    """
    chars = []
    cap_next = True
    for char in property_key(name).strip():
        if char.isascii() and char.isalpha():
            chars.append(char.upper() if cap_next else char)
            cap_next = False
        elif char.isascii() and char.isdigit():
            chars.append(char)
            cap_next = True
        else:
            cap_next = char in _WORD_SEPARATORS
    return "".join(chars)


def child_type_name(parent_name, property_name):
    """Name of the type derived for ``property_name`` nested in ``parent_name``."""
    renamed = _RENAMED_PROPERTIES.get(property_key(property_name))
    if renamed:
        return parent_name + renamed
    return parent_name + to_pascal_case(property_name)


def one_of_name(parent_name, index):
    return f"{parent_name}OneOf{index}"


def definition_ref(name):
    """Build a local ``$ref`` node pointing at the named definition."""
    return {"$ref": DEFINITION_PREFIX + name}


def is_reference(schema):
    return isinstance(schema, dict) and "$ref" in schema


def ref_name(schema):
    """Return the definition name of a local reference, or None for other refs."""
    ref = schema.get("$ref")
    if isinstance(ref, str) and ref.startswith(DEFINITION_PREFIX):
        return ref[len(DEFINITION_PREFIX):]
    return None
