import json
import os

from jsonschema import FormatChecker, validate, ValidationError

RES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "res")


def res_path(name: str):
    return os.path.join(RES_DIR, name)


def validate_schema(data: dict, schema_path: str, kind: str, exception):
    with open(schema_path, "r", encoding="utf-8") as schema_file:
        schema = json.load(schema_file)

    try:
        validate(instance=data, schema=schema, format_checker=FormatChecker())
    except ValidationError as err:
        msg = "{validation_kind} has an invalid format: {validation_err}."
        raise exception(
            message=msg,
            validation_kind=kind,
            validation_err=err.message,
        ) from err
