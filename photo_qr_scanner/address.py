"""
Structured address values.

An address attribute is a recursive variant: null, boolean, number, string,
array of values, or an object mapping strings to values. Geocoding services
return whatever JSON they like, so everything is normalized through
``encode_address_value`` before it is stored or exported.
"""

from typing import Any, Dict, List, Optional, Union

AddressValue = Union[None, bool, int, float, str, List['AddressValue'], Dict[str, 'AddressValue']]
Address = Dict[str, AddressValue]


class AddressValueError(TypeError):
    """Raised for values outside the supported address variant."""


def encode_address_value(value: Any, path: str = "address") -> AddressValue:
    """
    Normalize a value into the address variant.
    
    Tuples become lists, dictionary keys must be strings, and non-finite
    floats are rejected because they have no JSON representation.
    
    Args:
        value: Raw value to normalize
        path: Location of the value, used in error messages
        
    Returns:
        The normalized value
        
    Raises:
        AddressValueError: If the value (or a nested value) is unsupported
    """
    # bool before int: bool is a subclass of int
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            raise AddressValueError(f"{path}: non-finite number {value!r}")
        return value
    if isinstance(value, (list, tuple)):
        return [encode_address_value(item, f"{path}[{i}]") for i, item in enumerate(value)]
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise AddressValueError(f"{path}: object key {key!r} is not a string")
            result[key] = encode_address_value(item, f"{path}.{key}")
        return result
    raise AddressValueError(f"{path}: unsupported type {type(value).__name__}")


def encode_address(address: Optional[Dict[str, Any]]) -> Optional[Address]:
    """Normalize a whole address mapping; None stays None."""
    if address is None:
        return None
    encoded = encode_address_value(address)
    if not isinstance(encoded, dict):
        raise AddressValueError("address: expected an object")
    return encoded


def decode_address(data: Any) -> Optional[Address]:
    """Decode an address mapping read back from JSON."""
    if data is None:
        return None
    if not isinstance(data, dict):
        raise AddressValueError("address: expected an object")
    return encode_address_value(data)
