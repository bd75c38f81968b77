"""Turn pasted text or a topic into quizzes and administer them."""
