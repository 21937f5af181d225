from onu import Task

# Top-level entry point of the host package: never registered
task = Task(name="Entry point", slug="should-not-load", run=lambda input, ctx: None)
