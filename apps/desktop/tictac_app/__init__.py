"""Console front end for the TicTacLink serial board client."""
