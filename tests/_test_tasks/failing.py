from onu import Task


def explode(input, ctx):
    raise RuntimeError("boom")


task = Task(name="Always fails", slug="boom", run=explode)
