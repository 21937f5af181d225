from onu import Task

task = Task(name="first", slug="dup", run=lambda input, ctx: "first")
