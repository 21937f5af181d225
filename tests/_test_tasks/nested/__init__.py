from onu import Task

# Reserved names only apply at the top level
task = Task(name="Nested init", slug="nested-init", run=lambda input, ctx: "nested")
