"""
c4lab.ai - Search agents and learners for Connect Four

evaluation: linear threat-feature evaluation function
minimax: alpha-beta search player with parallel root evaluation
training: self-play helpers shared by the learners
genetic: genetic algorithm over evaluation weights
lms: online LMS / TD(0) learning of evaluation weights

Submodules are imported directly (``from c4lab.ai.minimax import ...``) to
keep c4lab.data free of import cycles.
"""
