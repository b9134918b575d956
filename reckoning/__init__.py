"""Reckoning events — from free-form narration to narrator-approved world changes.

Pipeline:
  1. ActionClassifier — maps text to one action from the fixed vocabulary
     (rule tables first, language-model fallback for ambiguous text).
  2. EventBuilder — fills actor / target / witnesses / tags of a structured
     event from AI metadata, inferring whatever the metadata leaves out.
  3. PendingEvolutionQueue — trait and relationship changes wait here until
     the narrator approves, edits or refuses them.
  4. EmergenceNotificationService — watches committed events for emerging
     villains and allies, debounces, persists and broadcasts to the narrator.
"""
