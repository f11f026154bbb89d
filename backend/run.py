from scoreguard import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Use SocketIO server so the background sweeps run alongside websockets
    socketio.run(app, debug=True)
