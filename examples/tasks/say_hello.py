"""Greets someone by name; rejects an empty name."""

from onu import FieldType, RunContext, Task, TaskField, ValidationResult


def validate(input: dict, ctx: RunContext) -> ValidationResult:
    if not str(input.get("name", "")).strip():
        return ValidationResult(valid=False, errors=["name is required"])
    return ValidationResult(valid=True)


def run(input: dict, ctx: RunContext) -> dict:
    return {"greeting": f"Hello, {input['name']}!", "execution_id": ctx.execution_id}


task = Task(
    name="Say hello",
    slug="say-hello",
    description="Return a greeting for the given name",
    owner="platform@example.com",
    input={
        "name": TaskField(name="Name", type=FieldType.STRING, required=True),
    },
    validate=validate,
    run=run,
)
