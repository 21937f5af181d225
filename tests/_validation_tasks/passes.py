from onu import Task

task = Task(
    name="validTask",
    description="testDescription",
    slug="valid-task",
    validate=lambda input, ctx: True,
    run=lambda input, ctx: 3,
)
