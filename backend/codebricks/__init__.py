"""CodeBricks AI - generate, explain, fix, optimize and test code with an AI model."""
