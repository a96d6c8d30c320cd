"""ragdesk: question answering over uploaded documents."""
