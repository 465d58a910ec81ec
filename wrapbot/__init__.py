"""
wrapbot - grid-wrapping worker planner

Leaves first:
  grid_map.py    immutable rasterized field (INSIDE / OBSTACLE / OUT_OF_BOUNDS)
  actions.py     directions, actions, text tokens
  visibility.py  cells wrapped from a pose (line-of-sight blocking)
  wrap_set.py    wrapped mask + live INSIDE mask (drilling grows it)
  worker.py      worker record, MissionState, apply_action()
  planner.py     greedy multi-worker round loop, solve()
  replay.py      re-executes logs from the initial state
  problem_io.py  JSON problems, .sol solutions
  batch.py       thread-pool fan-out over many problems
"""
