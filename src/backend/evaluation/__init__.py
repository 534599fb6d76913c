"""
Evaluation framework for the Management Agent.

Replays the advice pipeline over a labeled Langfuse dataset and scores every
answer with model-based evaluators:
  - Helpfulness: does the summary actually help the asker
  - Hallucination: does the summary invent facts not grounded in the question
"""
