"""In-process LLM job orchestration.

Many producers (tree summarizer, search agent, block analyzer) submit
prompts concurrently; one worker executes them strictly one at a time in
priority order, because they all share a single inference resource. Each
job carries a hard deadline; a job that hits it is aborted and reported as
a timeout and is never retried.
"""
